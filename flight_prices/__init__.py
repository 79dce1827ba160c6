"""Daily flight price collection from travel-search result pages into CSV."""
