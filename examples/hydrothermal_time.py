"""
Hydrothermal time: germination at several temperatures, seed-level simulation of cumulative counts.
"""
import matplotlib.pyplot as plt
from germthresh import ThresholdModel, create_grid
from germthresh import glm_fit, linear_fit, compare_estimates, plot_fits

####################################################################################################
# SET UP MODEL & SIMULATE DATA
####################################################################################################

hydrothermal_model = ThresholdModel('HydrothermalTime')

#ThetaHT (MPa degC h), PsiB50 (MPa), SigmaPsiB (MPa), BaseTemperature (degC)
true_param = [800.0, -0.8, 0.25, 5.0]

design = create_grid({'WaterPotential': [0.0, -0.3, -0.6],
                      'Temperature': [12.0, 18.0, 25.0],
                      'Time': [24.0, 48.0, 72.0, 96.0, 144.0, 192.0, 288.0]})

#each seed lot of 200 seeds draws its own base water potentials, counts accumulate over time
data = hydrothermal_model.sample(design, true_param, options={'Noise': 'Seeds', 'SeedNumber': 200, 'Seed': 7})

####################################################################################################
# FIT MODEL
####################################################################################################

#the direct fit estimates the base temperature, the regressions need it fixed
direct_fit = hydrothermal_model.fit(data, start_param=[600.0, -0.6, 0.3, 2.0], options={'Confidence': 'Intervals'})
base_temperature = float(direct_fit['Estimate','BaseTemperature'].iloc[0])

regression_options = {'BaseTemperature': base_temperature}
fits = {'Direct': direct_fit,
        'GLM': glm_fit(hydrothermal_model, data, options=regression_options),
        'Linear': linear_fit(hydrothermal_model, data, options=regression_options)}

print(compare_estimates(true_param, fits))

####################################################################################################
# PLOT FITS
####################################################################################################

for temperature in design['Temperature'].unique():
    subset = data[data['Temperature']==temperature]
    fig = plot_fits(hydrothermal_model, subset, fits)
    fig.axes[0].set_title('Temperature '+str(temperature))
plt.show()
