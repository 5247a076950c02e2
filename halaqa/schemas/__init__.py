"""
Pydantic request models for the Halaqa API.
"""
