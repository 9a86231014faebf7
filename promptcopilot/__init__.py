"""PromptCopilot - prompt assembly, generation and evaluation engine"""

__version__ = "0.1.0"
