"""Core build machinery: hooks, tasks, locales, merging and conversion."""
