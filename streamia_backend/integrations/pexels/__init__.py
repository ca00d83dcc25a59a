"""
Pexels integration: popular-video client and normalization into movie rows.
"""
