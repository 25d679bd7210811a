"""Bower endpoint handling and installation."""
