"""
SparkPro Studio Workflow
========================

Project workflow backend for a creative studio.
"""

__version__ = "0.1.0"
