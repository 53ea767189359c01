"""
HX_Libs - Hierax Library Modules

This package contains the papyri legibility enhancement core of the
Hierax project, organized into specialized sub-packages:

- ImagingLib: Image classification, color space conversion and background segmentation
- EnhancementLib: Enhancement requests, operators, variant expansion and method label lists
- BatchLib: Image reading, output writing and batch execution
"""

__version__ = "0.1.0"
