"""
Tutor progress engine.

Learning-progress core of a voice-driven language tutor: spaced repetition
scheduling, review queues, strategy selection, knowledge snapshots and
batched cloud sync.
"""

__version__ = "0.1.0"
