"""
SmartCare clinician dashboard backend.

The session subsystem reconciles the hosted identity provider's signed-in
identity with the clinician's doctor profile and gates dashboard views on it.
"""
