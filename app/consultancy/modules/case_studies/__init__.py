"""
Case studies module: client engagements shown on the marketing site.
"""
