"""Domain rules shared by the HTTP handlers and the reminder script."""
