"""
Plotting package - renders simulation results with matplotlib.
"""

from diagsim.plotting.scope_plotter import plot_traces

__all__ = ['plot_traces']
