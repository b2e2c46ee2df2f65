"""signalbench.backtest

Batch engine.

Aligned series, flip detectors, filters, scorer, trade simulator and the
per-bar aggregator that ties them together. Strategies live in
`signalbench.backtest.strategies`.
"""
