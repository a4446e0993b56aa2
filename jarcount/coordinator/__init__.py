"""Local job driver and metrics"""
