"""
Session Tracking Package.

Resumable activity timers (nursing, pumping, sleep) and the cross-activity
conflict checks that guard starting them.

ARCHITECTURE RULES:
- interfaces/ holds contracts and data classes only
- services/ holds the concrete store, clock and evaluator
- session_manager coordinates interfaces and never imports web/ or flask
"""
