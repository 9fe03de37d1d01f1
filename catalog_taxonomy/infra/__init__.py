"""Infrastructure: logging and database access."""
