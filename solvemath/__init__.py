"""solvemath: step-by-step math problem solving through a multimodal reasoning backend."""

__version__ = "1.0.0"
