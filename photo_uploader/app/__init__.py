"""Application state objects.

State QObjects expose the crop dialog's model to widgets through Qt
properties and change signals; they are mutated only by their owners.
"""
