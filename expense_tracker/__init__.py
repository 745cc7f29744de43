"""Console entry point for the kakeibo expense tracker."""
