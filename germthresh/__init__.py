from germthresh.model import ThresholdModel, create_grid
from germthresh.regression import (design_matrix, probit_transform, coefficients_to_params,
                                   params_to_coefficients, glm_fit, linear_fit)
from germthresh.analysis import compare_estimates, plot_fits, plot_probit
