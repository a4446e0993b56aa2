"""Configuration and error types shared by workers and the coordinator"""
