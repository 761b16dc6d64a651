"""
Offline sync.

Components:
- pending_queue.py: durable FIFO of operations that could not reach the store
- coordinator.py: wraps store writes, diverts transient failures, replays the queue
"""
