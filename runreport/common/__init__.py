"""Small helpers shared across runreport packages."""
