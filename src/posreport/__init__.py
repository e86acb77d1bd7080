"""Point-of-sale sales recording and daily reports."""
