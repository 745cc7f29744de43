"""HTTP interface for the kakeibo expense tracker."""
