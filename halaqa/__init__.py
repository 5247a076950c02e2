"""
Halaqa - Quran memorization circle management API.
"""
