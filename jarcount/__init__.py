"""
jarcount: a word count MapReduce job that runs an external program
for every input record and strips skip-patterns before counting.
"""

__version__ = "0.1.0"
