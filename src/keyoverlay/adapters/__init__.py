"""Host adapters embedding keyoverlay in interactive front ends."""
