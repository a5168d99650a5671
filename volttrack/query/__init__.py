"""Record filtering for the list view."""
