"""virtualpop: Individual-based virtual fish population simulator.

A discrete-time, individual-based model producing synthetic fishery data
with known "true" population parameters:
  - Seasonally oscillating von Bertalanffy growth with lognormal
    heterogeneity in Linf and K
  - Threshold maturation against an individual length-at-maturity
  - Beverton-Holt recruitment driven by spawning stock biomass and a
    seasonal reproduction schedule
  - Natural + size-selective fishing mortality with cause attribution
  - Length-frequency sampling of the catch at scheduled fishing times

Intended for testing stock-assessment methods (e.g. LFQ-based growth and
mortality estimation) against simulated stocks.
"""

__version__ = "0.1.0"
