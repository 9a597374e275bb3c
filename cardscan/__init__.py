"""CardScan: photographed Pokemon card to structured, priced card data."""
