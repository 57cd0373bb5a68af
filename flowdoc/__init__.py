"""FlowDoc — keyword-driven documentation to Mermaid flowcharts."""

__version__ = "0.1.0"
