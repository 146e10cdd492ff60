"""
Gesture Heart
=============

A volumetric particle heart that breathes on its own and reacts to hand
gestures tracked from a webcam.

Modules:
    - capture: Webcam frame acquisition
    - detection: Hand landmark types and MediaPipe hand tracking
    - recognition: Landmark classifier producing GestureState
    - simulation: Heart volume sampler and particle engine
    - utils: Configuration, logging, performance, preview rendering
"""

__version__ = "1.0.0"
__author__ = "Gesture Heart Team"
