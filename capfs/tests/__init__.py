"""capfs test suite."""
