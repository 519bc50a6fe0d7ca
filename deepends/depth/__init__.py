"""
Depth Sample Module.

Responsibilities:
- Decoding photos with embedded disparity maps
- Orientation correction of photo and disparity
- Disparity normalization and visualization
"""

from .sample_loader import DepthSampleLoader, write_depth_sample
