# 📄 File: app/modules/bake_timeline/__init__.py
# 🧭 Purpose (Layman Explanation):
# The bake timeline module: reminders for every baking step and finish-time adjustments
# based on the kitchen temperature and humidity.
# 🧪 Purpose (Technical Summary):
# Package root for the bake-timeline notification and recalibration engine
# (domain models/services, engine components, infrastructure adapters, HTTP presentation).
# 🔗 Dependencies:
# Subpackages only
# 🔄 Connected Modules / Calls From:
# app.main, app.api.v1.router
