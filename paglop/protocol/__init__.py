"""Protocol implementations that carry chat to and from Paglop."""
