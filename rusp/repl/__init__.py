"""Interactive read-eval-print loop."""
