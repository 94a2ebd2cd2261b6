"""Application services shared by every provider wrapper."""
