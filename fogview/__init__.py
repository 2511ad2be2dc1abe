"""Noise volume viewer core with camera and scene-node controllers."""
