"""Developer command line."""
