"""Video analysis pipeline: compress, analyze with a multimodal model, write back to Feishu bitable."""

__version__ = "0.1.0"
