"""Map and reduce task execution"""
