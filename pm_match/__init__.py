"""PM Match: score a resume against a job description with a generative model."""

__version__ = "0.1.0"
