"""
vibration_id: Bayesian parameter identification of vibrating structures

This package contains implementations of:
- Oscillator models with parameter-augmented states (ssm)
- Nonlinear filters: RK4 propagation, UKF and bootstrap particle filter (filters)
- Metrics, configuration, experiment logging and plotting (utils)
"""
