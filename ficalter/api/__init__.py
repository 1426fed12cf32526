"""HTTP serving layer for ficalter."""
