"""HTTP API routes"""
