"""Pure survival-game domain: state, rules, survivor mutations, outcome rolls."""

API_VERSION = "core-v2-daycycle"
