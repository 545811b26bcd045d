"""Application layer - the segmentation pipeline."""
