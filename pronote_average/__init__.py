"""Grade average extraction and coefficient-weighted averaging for Pronote pages."""
