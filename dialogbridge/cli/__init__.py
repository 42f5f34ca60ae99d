"""CLI module for dialogbridge."""
