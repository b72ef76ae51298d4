"""Flask front end for the product scraper and catalog."""
