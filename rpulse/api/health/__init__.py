"""Banner and probe resources, registered in every app mode."""
