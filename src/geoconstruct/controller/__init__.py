"""
The CONTROLLER layer turns user intents into model operations and publishes
change notifications through Qt signals.
"""
