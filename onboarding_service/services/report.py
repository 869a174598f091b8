"""
Plain-text summary of a finished onboarding run.
"""
from onboarding_service.models.remote import AnalysisResult, WorkoutPlan


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_plan_summary(analysis: AnalysisResult, plan: WorkoutPlan) -> str:
    """
    Render the analysis and workout plan as a readable report.

    Args:
        analysis: Behavioral analysis result
        plan: Generated workout plan

    Returns:
        Multi-section text report
    """
    motivation = analysis.motivationAnalysis
    success = analysis.successPrediction
    timeline = analysis.timelinePrediction
    milestones = analysis.milestones

    sections = [
        "Your Personalized Workout Plan",
        plan.message,
        f"Biological Impact\n{plan.biology or 'Not specified'}",
        f"Psychological Considerations\n{plan.psychology or 'Not specified'}",
        "Success Analysis\n"
        f"- Success Probability: {success.successProbability}%\n"
        f"- Confidence Score: {success.confidenceScore}%\n"
        f"- Key Factors: {', '.join(success.keyFactors)}",
        "Timeline\n"
        f"- Estimated Duration: {timeline.estimatedWeeks} weeks\n"
        f"- Key Timeline Factors: {', '.join(timeline.keyFactors)}",
        "Milestones\n"
        f"Short Term (1-3 months):\n{_bullets(milestones.shortTerm)}\n\n"
        f"Mid Term (3-6 months):\n{_bullets(milestones.midTerm)}\n\n"
        f"Long Term (6-12 months):\n{_bullets(milestones.longTerm)}",
        "Motivation Analysis\n"
        f"- Readiness Score: {motivation.readinessScore}/100\n"
        f"- Key Motivators: {', '.join(motivation.underlyingMotivations)}",
        f"Recommendations\n{_bullets(success.recommendations)}",
        f"Next Steps:\n{_bullets(plan.suggestions)}",
    ]
    return "\n\n".join(sections) + "\n"
