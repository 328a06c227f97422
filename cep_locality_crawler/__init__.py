"""
CEP locality crawler.

Looks up every locality and its postal-code (CEP) range for a batch of
Brazilian UFs by driving the Correios range search page in a browser.
"""

__version__ = "1.0.0"
