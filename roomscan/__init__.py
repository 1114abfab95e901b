"""
Room Scan Layout Pipeline

Turns depth-sensor point clouds captured during a room scan into a
simplified floor plan: wall segments, classified furniture and a room
layout summary.

Pipeline stages:
1. Classify - Split points into wall and furniture height bands
2. Cluster - Group candidate points around seed points
3. Objects - Bound and classify furniture, build wall segments
4. Layout - Floor plan, area and room type

The scan session (session.py) reruns the stages once per tick while a
scan is running and once over the full point cloud when it stops.
"""

__version__ = "0.1.0"
