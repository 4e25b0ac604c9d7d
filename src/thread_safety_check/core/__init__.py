"""
Core Package.

Data model shared by the analysis components:
- Member descriptors
- Check results and member violations
- The registration oracle and its snapshot implementation
"""
