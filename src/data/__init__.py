"""Loading of roster and ballot files, and formatting of count results."""
