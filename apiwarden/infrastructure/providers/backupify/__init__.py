"""Backupify backup inventory wrapper."""
