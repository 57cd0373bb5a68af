"""FlowDoc core — flowchart compiler and configuration."""
