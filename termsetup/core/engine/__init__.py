"""
Engine — backup ledger, step sequencer, rollback engine, report.
"""
