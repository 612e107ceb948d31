"""
User interface components.

- MainWindow: Application shell with docks and the render worker
- node_graph: The canvas widget and its Qt input adapters
- panels: Properties and console docks
"""
