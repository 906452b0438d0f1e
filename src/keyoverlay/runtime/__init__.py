"""Runtime services shared by every keyoverlay component."""
