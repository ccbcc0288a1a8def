"""
Market Model Accounting Engine

Modules:
- engine: single-path accounting loop with numeraire rebasing
- discounter: cash flow -> numeraire bond conversion
- evolution: rate grid, evolution steps, numeraire choice per step
- curves: forward-rate curve state snapshots
- evolvers: scripted and lognormal forward-rate evolvers
- products: cash-flow records + scheduled (deterministic) products
- path_statistics: sequential multi-path averaging
- interfaces: collaborator protocols
- config / exceptions / utils: settings, error taxonomy, day count + grid helpers
"""
