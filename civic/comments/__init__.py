"""Comments: the unit of public input moderated by the platform."""
