"""
Simulates germination data from the hydrotime model, recovers the parameters with the three
fitting strategies and compares them against the truth.
"""
import matplotlib.pyplot as plt
from germthresh import ThresholdModel, create_grid
from germthresh import glm_fit, linear_fit, compare_estimates, plot_fits, plot_probit

####################################################################################################
# SET UP MODEL & SIMULATE DATA
####################################################################################################

hydrotime_model = ThresholdModel('Hydrotime')

#true parameters; ThetaH (MPa h), PsiB50 (MPa), SigmaPsiB (MPa)
true_param = [40.0, -1.0, 0.3]

#germination is scored at a series of times for seed lots at several water potentials
design = create_grid({'WaterPotential': [0.0, -0.2, -0.4, -0.6, -0.8],
                      'Time': [12.0, 24.0, 36.0, 48.0, 72.0, 96.0, 120.0, 168.0, 240.0]})

#add gaussian noise to the true germination fractions
data = hydrotime_model.sample(design, true_param, options={'NoiseLevel': 0.03, 'SeedNumber': 100, 'Seed': 2020})
print(data)

####################################################################################################
# FIT MODEL THREE WAYS
####################################################################################################

#direct minimization of the squared fraction residuals, started from a crude grid search
direct_options = {'InitParamBounds': [(10., 80.), (-1.5, -0.5), (0.1, 0.6)],
                  'InitSearchNumber': 4,
                  'Confidence': 'Intervals'}
direct_fit = hydrotime_model.fit(data, options=direct_options)

#binomial GLM with a probit link on the germinated counts
glm_info, glm_coefficients = glm_fit(hydrotime_model, data,
                                     options={'Confidence': 'Intervals', 'ReturnCoefficients': True})

#linear model on the probit-transformed fractions, 0 and 1 are dropped
linear_info = linear_fit(hydrotime_model, data, options={'Confidence': 'Intervals'})

print(glm_coefficients)
fits = {'Direct': direct_fit, 'GLM': glm_info, 'Linear': linear_info}
for method, fit_info in fits.items():
    print(method)
    print(fit_info)

####################################################################################################
# COMPARE WITH TRUTH
####################################################################################################

print(compare_estimates(true_param, fits))

#repeat over many simulated replicates to look at bias and spread of each method
replicat_datasets = hydrotime_model.sample(design, true_param, design_replicates=50,
                                           options={'NoiseLevel': 0.03, 'Seed': 1990})
replicat_fits = {'Direct': hydrotime_model.fit(replicat_datasets, start_param=true_param),
                 'GLM': glm_fit(hydrotime_model, replicat_datasets),
                 'Linear': linear_fit(hydrotime_model, replicat_datasets)}
print(compare_estimates(true_param, replicat_fits))

####################################################################################################
# PLOT FITS
####################################################################################################

plot_fits(hydrotime_model, data, fits)
plot_probit(hydrotime_model, data, direct_fit['Estimate'].iloc[0].to_numpy())
plt.show()
