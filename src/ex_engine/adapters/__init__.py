"""Host adapters; each one imports its UI toolkit lazily."""
