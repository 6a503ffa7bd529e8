"""Services package: embedding adapter, scorers and question selection."""
