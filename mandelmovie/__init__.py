"""mandelmovie - bounded-concurrency frame supervisor.

Launches an external Mandelbrot renderer once per frame of a zoom sequence,
keeping at most a fixed number of renderer processes alive at a time.
"""

__version__ = "0.1.0"
