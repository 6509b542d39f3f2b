"""Autonomy — action pipeline and the loops that drive it."""
