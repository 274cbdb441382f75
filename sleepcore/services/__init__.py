"""
Engine services

- state_estimator: fixed-gain belief update
- action_values / policy_selector: Thompson Sampling over interventions
- reward: transition reward
- sleep_profile: chronotype and sleep need from the questionnaire
- sleep_window / tib_advisor / adherence: sleep window prescription
- jitai_scheduler / decision_log: just-in-time reminders and their audit trail
- sleep_engine / registry: per-user composition
"""
