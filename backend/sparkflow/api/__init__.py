"""
SparkPro Studio Workflow - API Package
======================================

FastAPI routers and dependencies.
"""
