"""
MED1 backend: FastAPI application for doctors and the patient portal.
"""

__version__ = "1.0.0"
