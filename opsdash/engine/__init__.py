"""
Command center aggregation and alerting engine.

- coercion: normalization of loosely-typed backend values
- bucketing: calendar day / month series
- correlation: contacts joined with the calls that booked their appointments
- kpis: formatted KPI card families
- alerts: rule-based alert synthesis and severity ranking
- activity_feed: recent operations timeline
- action_items: follow-up suggestions and system status
- date_range: date range presets
- pages: System Health, Call Activity, Subscriptions and Pipeline page builders
- command_center: concurrent load cycle and snapshot assembly

Modules are imported directly (e.g. ``from opsdash.engine.alerts import
AlertSynthesizer``); the record models depend on ``coercion``, so this
package does not import its submodules eagerly.
"""
